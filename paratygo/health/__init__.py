"""Health verification: probe engine, Paraty GO! probe battery and reporting."""
