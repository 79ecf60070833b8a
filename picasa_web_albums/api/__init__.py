"""HTTP plumbing: query URLs, feed fetching, raw transport and error classification."""
