"""Pure PR, recommendation and training-frequency logic."""
