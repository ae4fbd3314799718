"""Core building blocks: settings, exceptions, database, services."""
