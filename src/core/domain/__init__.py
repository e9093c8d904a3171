"""Request descriptors, fetch outcomes and the MPK/SIMS record models."""
