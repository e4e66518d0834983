"""
Legacy execution steps

A flattened, execution-order view of a parse pass (project folder, then
directory / file / command steps as they appear) used by the simulated
progress display.
"""

from typing import Iterable, List, Set

from solforge.modules.forge.models import (
    DirectoryAction,
    FileAction,
    ShellAction,
    Step,
    StepStatus,
    StepType,
)
from solforge.modules.forge.paths import ancestor_directories, file_name


def build_steps(artifact_id: str, title: str, actions: Iterable) -> List[Step]:
    steps: List[Step] = []
    created_dirs: Set[str] = set()

    def add(**kwargs) -> None:
        steps.append(Step(id=len(steps) + 1, **kwargs))

    def add_folder(path: str) -> None:
        if path in created_dirs:
            return
        created_dirs.add(path)
        add(
            title=f"Create directory {file_name(path)}",
            description=f"Creating directory: {path}",
            type=StepType.CREATE_FOLDER,
            path=path,
        )

    add(title=title, description=f"Project: {artifact_id}", type=StepType.CREATE_FOLDER)

    for action in actions:
        if isinstance(action, FileAction):
            for directory in ancestor_directories(action.path):
                add_folder(directory)
            add(
                title=f"Create {file_name(action.path)}",
                description=f"Creating file: {action.path} ({len(action.content)} characters)",
                type=StepType.CREATE_FILE,
                code=action.content,
                path=action.path,
            )
        elif isinstance(action, DirectoryAction):
            for directory in ancestor_directories(action.path) + [action.path]:
                add_folder(directory)
        elif isinstance(action, ShellAction):
            add(
                title=f"Run: {action.command}",
                description=f"Execute command: {action.command}",
                type=StepType.RUN_SCRIPT,
                code=action.command,
                command=action.command,
            )

    return steps


def renumber_steps(steps: Iterable[Step]) -> List[Step]:
    """Concatenated step lists keep unique, sequential ids"""
    renumbered = []
    for index, step in enumerate(steps, start=1):
        renumbered.append(Step(
            id=index,
            title=step.title,
            description=step.description,
            type=step.type,
            status=step.status,
            code=step.code,
            path=step.path,
            command=step.command,
        ))
    return renumbered


def reset_steps(steps: Iterable[Step]) -> List[Step]:
    """Every step back to pending, as the progress display's reset button does"""
    return [
        Step(
            id=step.id,
            title=step.title,
            description=step.description,
            type=step.type,
            status=StepStatus.PENDING,
            code=step.code,
            path=step.path,
            command=step.command,
        )
        for step in steps
    ]
