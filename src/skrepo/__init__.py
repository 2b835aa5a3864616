"""SKRepo — versioned skill repository.

Stores packaged skills in an S3-compatible bucket or a local directory,
keeps a JSON version index per store, and resolves installs across
local -> remote -> GitHub releases.
"""

__version__ = "0.1.0"

SKREPO_HOME = "~/.skill-builder"
