"""Feature modules: pure game rules and the services that orchestrate them."""
