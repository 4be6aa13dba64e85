"""Admin-only routers, mounted under /admin."""
