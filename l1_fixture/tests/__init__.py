"""
L1 Fixture tests

Run with:
   pytest l1_fixture/tests/ -v

None of the tests need a Docker daemon or a running node; the container
runtime and the RPC endpoint are replaced with mocks.
"""
