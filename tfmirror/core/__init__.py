"""Core mirror logic: archiving, discovery, the artifact registry, and promotion."""
