"""External collaborators: site configuration storage and GitHub."""
