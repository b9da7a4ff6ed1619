"""Engine — resolve, classify, execute, and gate."""
