from escrow.models.project import ActivityRow, ProjectRow, UserRow  # noqa: F401
