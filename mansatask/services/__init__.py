"""Business logic; routes stay thin and call into these modules."""
