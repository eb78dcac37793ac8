"""Infrastructure adapters: file system sandbox, templating, configuration
and secrets."""
