"""
Entry point for running the package as a module: python -m supabase_compliance
"""

from supabase_compliance.cli.main import app

if __name__ == "__main__":
    app()
