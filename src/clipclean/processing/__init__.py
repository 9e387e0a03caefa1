"""External media tool invocation."""
