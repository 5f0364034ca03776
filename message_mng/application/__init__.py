# Application layer - services and repository ports
