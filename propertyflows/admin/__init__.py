"""Administrative tooling."""
