"""Feature packages (models, repositories, services, routers)."""
