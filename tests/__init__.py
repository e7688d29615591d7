# =============================================================================
# AUGUR FORK RISK MONITOR - TEST SUITE
# =============================================================================
#
# Layout:
#   tests/
#     fakes.py        - In-memory Ethereum node (no network access)
#     unit/           - Unit Tests (scorer, config, chain layer, disputes, storage)
#     integration/    - Integration Tests (full run against the fake node)
#
# Usage:
#   pytest tests/
#   pytest tests/unit/
#
# =============================================================================
