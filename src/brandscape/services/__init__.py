"""External collaborators: model clients, retrieval, screening and storage."""
