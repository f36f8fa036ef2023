"""
Mind-Map Engine Tests

TEST AXIOMS:
=============
1. Determinism: same snapshot + same command = identical outcome
2. Totality: no command raises, invalid ones are no-ops
3. Explicit failure: sync errors surface as Error data
"""
