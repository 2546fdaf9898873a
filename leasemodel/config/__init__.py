"""Engine configuration read from the environment (see env.py)."""
