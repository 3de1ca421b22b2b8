"""HTTP API for TopicMap."""
