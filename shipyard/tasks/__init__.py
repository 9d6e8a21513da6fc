"""Build, test and release tasks.

Each module declares tasks with `@task(name=..., deps=[...])`; the CLI imports
every module here and registers what it finds. Keep one concern per module.
"""
