"""Player-side pipeline: deck commitment, proof assembly, submission and reconciliation."""
