"""Built-in kubectl-multi commands."""
