"""HTTP API: pass triggers and read endpoints."""
