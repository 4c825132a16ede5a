# =============================================================================
# DIP REGISTRY - TEST SUITE
# =============================================================================
#
# Structure:
#   tests/
#     unit/           - Unit tests (models, parser, validator, lifecycle,
#                       registry, config, loader)
#     integration/    - Storage, audit log, full lifecycle and CLI
#
# Usage:
#   pytest                               # All tests
#   pytest tests/unit/                   # Unit tests only
#   python run_tests.py --quick          # Smoke test
#
# =============================================================================
