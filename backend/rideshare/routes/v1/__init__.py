"""Resource routers, mounted by rideshare.main."""
