"""deploy_scout.parser: HTML parsing and command-pattern extraction."""
