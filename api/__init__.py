"""HTTP plumbing shared by every router: middleware, error envelope, health."""
