"""HTTP primitives — immutable Request, Headers, QueryParams, and Response types."""
