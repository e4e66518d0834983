"""
Unit Tests for legacy execution steps
"""
from solforge.modules.forge.interpreter import interpret_actions
from solforge.modules.forge.models import Step, StepStatus, StepType
from solforge.modules.forge.steps import build_steps, renumber_steps, reset_steps


class TestBuildSteps:

    def test_directory_steps_are_not_repeated(self):
        actions = interpret_actions(
            '<forgeAction type="file" filePath="src/a.ts">a</forgeAction>'
            '<forgeAction type="file" filePath="src/b.ts">b</forgeAction>'
            '<forgeAction type="directory" dirPath="src/empty"></forgeAction>'
        )

        steps = build_steps("proj", "Project", actions)

        assert [(s.type, s.path) for s in steps] == [
            (StepType.CREATE_FOLDER, None),
            (StepType.CREATE_FOLDER, "src"),
            (StepType.CREATE_FILE, "src/a.ts"),
            (StepType.CREATE_FILE, "src/b.ts"),
            (StepType.CREATE_FOLDER, "src/empty"),
        ]
        assert steps[1].title == "Create directory src"
        assert steps[1].description == "Creating directory: src"
        assert all(s.status == StepStatus.PENDING for s in steps)

    def test_project_step_only(self):
        steps = build_steps("p", "Empty", [])

        assert len(steps) == 1
        assert steps[0].title == "Empty"


class TestStepTransforms:

    def test_renumber(self):
        steps = build_steps("p", "P", []) + build_steps("q", "Q", [])

        assert [s.id for s in renumber_steps(steps)] == [1, 2]
        assert [s.id for s in steps] == [1, 1]

    def test_reset(self):
        steps = build_steps("p", "P", interpret_actions('<forgeAction type="shell">ls</forgeAction>'))
        steps[0].status = StepStatus.COMPLETED
        steps[1].status = StepStatus.FAILED

        reset = reset_steps(steps)

        assert all(s.status == StepStatus.PENDING for s in reset)
        assert [s.id for s in reset] == [s.id for s in steps]
        assert steps[0].status == StepStatus.COMPLETED

    def test_to_dict_uses_enum_values(self):
        data = build_steps("p", "P", [])[0].to_dict()

        assert data["type"] == "CreateFolder"
        assert data["status"] == "pending"

    def test_edit_and_install_types_serialize(self):
        steps = [
            Step(id=1, title="Edit", description="Editing src/a.ts", type=StepType.EDIT_FILE, path="src/a.ts"),
            Step(id=2, title="Install", description="Installing zod", type=StepType.INSTALL_PACKAGE, command="npm i zod"),
        ]

        assert [s.to_dict()["type"] for s in steps] == ["EditFile", "InstallPackage"]

    def test_build_steps_emits_only_create_and_run(self):
        actions = interpret_actions(
            '<forgeAction type="file" filePath="a.ts">a</forgeAction>'
            '<forgeAction type="shell">npm i zod</forgeAction>'
        )

        types = {s.type for s in build_steps("p", "P", actions)}

        assert types == {StepType.CREATE_FOLDER, StepType.CREATE_FILE, StepType.RUN_SCRIPT}
