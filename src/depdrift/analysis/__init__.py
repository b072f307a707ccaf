"""Analysis: dependency tree construction and version diffing."""
