# HTTP API layer
