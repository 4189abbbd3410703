"""Admin Console.

Authentication, session state, and activity logging for the admin /
super-admin console, backed by Supabase.
"""

__version__ = "1.0.0"
