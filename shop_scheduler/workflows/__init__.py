"""Workflow management for shop scheduling operations."""

from .project_workflow import ProjectCreationResult, ProjectSchedulingWorkflow

__all__ = [
    'ProjectSchedulingWorkflow',
    'ProjectCreationResult',
]
