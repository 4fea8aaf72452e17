"""Query services: chain registry access, cross-chain federation, ranking and investment totals."""
