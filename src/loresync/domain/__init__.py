"""Pure sync engine: extraction, mapping, reconciliation, links and plans."""
