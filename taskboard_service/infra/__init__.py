"""Infrastructure adapters: logging, database, mail and notifier transports."""
