# Infrastructure - document stores, external services, token security
