"""Application layer - resolution logic and the ports it depends on."""
