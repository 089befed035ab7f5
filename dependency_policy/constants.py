"""Constants for dependency-policy."""

# Exit codes for CI gates
EXIT_SUCCESS = 0  # Policy satisfied
EXIT_VIOLATIONS = 1  # At least one deny finding
EXIT_ERROR = 2  # Evaluation could not complete

# Default crates.io index, allowed unless the policy overrides it
CRATES_IO_INDEX = "https://github.com/rust-lang/crates.io-index"
