"""HTTP routers. Each handler delegates to the orchestrator and renders the result."""
