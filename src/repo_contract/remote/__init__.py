"""Remote repository collaborators (branch listing, branch protection)."""
