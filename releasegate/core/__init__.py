"""Release orchestration core — gate, build fan-out, staging, publishing."""
