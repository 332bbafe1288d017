# 📄 File: lexcircle/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'lexcircle' folder as the LexCircle application and records its version.
#
# 🧪 Purpose (Technical Summary):
# Package initialization with version and package metadata.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - lexcircle.main (application entry point)
# - pyproject.toml (project version)

"""
LexCircle - Legal Community Social Graph Service

Backend API for following, blocking and discovering members of a legal
professional community, with self-healing follower counters.
"""

__version__ = "1.0.0"
__title__ = "LexCircle Backend API"
__description__ = "Legal community social graph service"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
]
