"""NEO impact estimator: impact physics model and reactive parameter store."""
