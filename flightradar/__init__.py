"""Live aircraft position relay between flight-simulator players and ATC observers."""
