"""
Tests for EnvironmentService: lifecycle, ordering, sort order batches, deletion guards.
Run: pytest tests/test_environment_service.py -v
"""
import itertools

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.modules.environments.schemas import EnvironmentCreate, EnvironmentUpdate
from app.modules.environments.service import EnvironmentPolicy, EnvironmentService


class TestEnvironmentCreate:

    def test_created_environment_is_disabled(self, environment_service, create_env):
        create_env("staging", "development")
        env = environment_service.get("staging")
        assert env.name == "staging"
        assert env.type == "development"
        assert env.enabled is False

    def test_duplicate_name_conflicts(self, environment_service, create_env, environment_store):
        create_env("staging", "development", sort_order=3)
        version = environment_store.version
        with pytest.raises(ConflictError):
            create_env("staging", "production", sort_order=7)
        env = environment_service.get("staging")
        assert env.type == "development"
        assert env.sort_order == 3
        assert environment_store.version == version
        assert len(environment_service.get_all()) == 1

    def test_default_sort_order_appends(self, create_env):
        assert create_env("a").sort_order == 1
        assert create_env("b", sort_order=10).sort_order == 10
        assert create_env("c").sort_order == 11

    def test_explicit_sort_order_kept(self, create_env):
        assert create_env("prod", "production", sort_order=0).sort_order == 0

    def test_invalid_name_rejected_by_schema(self):
        from pydantic import ValidationError as SchemaValidationError
        with pytest.raises(SchemaValidationError):
            EnvironmentCreate(name="", type="development")
        with pytest.raises(SchemaValidationError):
            EnvironmentCreate(name="has space", type="development")

    @pytest.mark.parametrize("name", [".", "..", "..."])
    def test_dot_only_names_rejected(self, name):
        from pydantic import ValidationError as SchemaValidationError
        with pytest.raises(SchemaValidationError):
            EnvironmentCreate(name=name, type="development")

    def test_dots_inside_names_allowed(self):
        assert EnvironmentCreate(name="v1.2", type="development").name == "v1.2"

    def test_trailing_newline_rejected_by_schema_and_validate_name(self, environment_service):
        from pydantic import ValidationError as SchemaValidationError
        with pytest.raises(SchemaValidationError):
            EnvironmentCreate(name="qa\n", type="development")
        assert environment_service.validate_name("qa\n") is False


class TestValidateName:

    def test_free_name(self, environment_service):
        assert environment_service.validate_name("qa") is True

    def test_taken_name(self, environment_service, create_env):
        create_env("qa")
        assert environment_service.validate_name("qa") is False

    @pytest.mark.parametrize("name", ["", "with space", "slash/name", "x" * 101, "qa\n", ".", ".."])
    def test_malformed_name(self, environment_service, name):
        assert environment_service.validate_name(name) is False

    def test_does_not_mutate(self, environment_service, environment_store):
        environment_service.validate_name("qa")
        assert environment_store.version == 0
        assert environment_service.get_all() == []


class TestEnvironmentGet:

    def test_get_missing(self, environment_service):
        with pytest.raises(NotFoundError):
            environment_service.get("nope")

    def test_get_all_empty(self, environment_service):
        assert environment_service.get_all() == []

    @pytest.mark.parametrize(
        "order", list(itertools.permutations([("b", 2), ("a", 2), ("c", 1), ("d", 3)]))
    )
    def test_get_all_ordering_independent_of_insertion(self, environment_service, create_env, order):
        for name, sort_order in order:
            create_env(name, sort_order=sort_order)
        assert [e.name for e in environment_service.get_all()] == ["c", "a", "b", "d"]

    def test_project_count(self, environment_service, create_env, project_store):
        create_env("dev", enabled=True)
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.insert_project({"id": "p2", "name": "P2"})
        project_store.upsert_link("p1", "dev", True)
        project_store.upsert_link("p2", "dev", False)
        assert environment_service.get("dev").project_count == 2
        assert environment_service.get_all()[0].project_count == 2


class TestEnvironmentUpdate:

    def test_update_type_and_sort_order(self, environment_service, create_env):
        create_env("qa", "development", sort_order=1)
        env = environment_service.update_environment("qa", EnvironmentUpdate(type="test", sort_order=4))
        assert env.type == "test"
        assert env.sort_order == 4
        assert environment_service.get("qa").type == "test"

    def test_empty_patch_returns_existing(self, environment_service, create_env):
        create_env("qa", "development", sort_order=2)
        env = environment_service.update_environment("qa", EnvironmentUpdate())
        assert env.type == "development"
        assert env.sort_order == 2

    def test_update_missing(self, environment_service):
        with pytest.raises(NotFoundError):
            environment_service.update_environment("nope", EnvironmentUpdate(type="x"))

    def test_rename_not_allowed(self):
        from pydantic import ValidationError as SchemaValidationError
        with pytest.raises(SchemaValidationError):
            EnvironmentUpdate(name="renamed")


class TestToggle:

    def test_enable_disable(self, environment_service, create_env):
        create_env("qa")
        environment_service.toggle_environment("qa", True)
        assert environment_service.get("qa").enabled is True
        environment_service.toggle_environment("qa", False)
        assert environment_service.get("qa").enabled is False

    def test_toggle_is_idempotent(self, environment_service, create_env, environment_store):
        create_env("qa")
        environment_service.toggle_environment("qa", True)
        version = environment_store.version
        environment_service.toggle_environment("qa", True)
        assert environment_store.version == version

    def test_toggle_missing(self, environment_service):
        with pytest.raises(NotFoundError):
            environment_service.toggle_environment("nope", True)

    def test_disable_does_not_touch_links(self, environment_service, create_env, project_store):
        create_env("qa", enabled=True)
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.upsert_link("p1", "qa", True)
        environment_service.toggle_environment("qa", False)
        assert project_store.get_link("p1", "qa")["enabled_for_project"] is True


class TestSortOrder:

    def test_partial_update(self, environment_service, create_env):
        create_env("a", sort_order=1)
        create_env("b", sort_order=2)
        create_env("c", sort_order=3)
        environment_service.update_sort_order({"c": 0, "a": 5})
        envs = {e.name: e.sort_order for e in environment_service.get_all()}
        assert envs == {"c": 0, "b": 2, "a": 5}
        assert [e.name for e in environment_service.get_all()] == ["c", "b", "a"]

    def test_unknown_name_fails_atomically(self, environment_service, create_env, environment_store):
        create_env("A", sort_order=1)
        version = environment_store.version
        with pytest.raises(NotFoundError) as exc_info:
            environment_service.update_sort_order({"A": 5, "B": 1})
        assert "'B'" in str(exc_info.value)
        assert environment_service.get("A").sort_order == 1
        assert environment_store.version == version

    def test_all_unknown_names_reported(self, environment_service, create_env):
        create_env("A")
        with pytest.raises(NotFoundError) as exc_info:
            environment_service.update_sort_order({"Z": 1, "B": 2, "A": 3})
        assert exc_info.value.environment_names == ["B", "Z"]

    def test_empty_mapping_rejected(self, environment_service):
        with pytest.raises(ValidationError):
            environment_service.update_sort_order({})


class TestDelete:

    def test_delete_disabled_environment(self, environment_service, create_env):
        create_env("qa")
        environment_service.delete_environment("qa")
        with pytest.raises(NotFoundError):
            environment_service.get("qa")

    def test_delete_missing(self, environment_service):
        with pytest.raises(NotFoundError):
            environment_service.delete_environment("nope")

    def test_delete_linked_environment_conflicts(self, environment_service, create_env, project_store):
        create_env("qa", enabled=True)
        create_env("prod", enabled=True)
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.upsert_link("p1", "qa", True)
        with pytest.raises(ConflictError) as exc_info:
            environment_service.delete_environment("qa")
        assert "p1" in str(exc_info.value)
        assert environment_service.get("qa").name == "qa"

    def test_delete_last_enabled_environment_conflicts(self, environment_service, create_env):
        create_env("only", enabled=True)
        create_env("off")
        with pytest.raises(ConflictError):
            environment_service.delete_environment("only")
        assert environment_service.get("only").enabled is True

    def test_delete_enabled_when_others_remain(self, environment_service, create_env):
        create_env("a", enabled=True)
        create_env("b", enabled=True)
        environment_service.delete_environment("a")
        assert [e.name for e in environment_service.get_all()] == ["b"]

    @pytest.fixture
    def relaxed_service(self, environment_store, project_store):
        return EnvironmentService(
            environment_store, project_store,
            EnvironmentPolicy(min_enabled_environments=0, block_delete_when_linked=False),
        )

    def test_policy_is_configurable(self, relaxed_service, project_store, create_env):
        create_env("a", enabled=True)
        create_env("b", enabled=True)
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.upsert_link("p1", "a", True)
        project_store.upsert_link("p1", "b", True)
        relaxed_service.delete_environment("a")
        assert [e.name for e in relaxed_service.get_all()] == ["b"]
        assert [link["environment_name"] for link in project_store.list_links("p1")] == ["b"]

    def test_sole_active_environment_always_blocks(self, relaxed_service, project_store, create_env):
        create_env("dev", enabled=True)
        create_env("prod", enabled=True)
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.upsert_link("p1", "dev", True)
        with pytest.raises(ConflictError) as exc_info:
            relaxed_service.delete_environment("dev")
        assert "only active environment" in str(exc_info.value)
        assert relaxed_service.get("dev").name == "dev"
        assert project_store.get_link("p1", "dev") is not None

    def test_other_links_must_be_active(self, relaxed_service, environment_service,
                                        project_store, create_env):
        create_env("dev", enabled=True)
        create_env("prod", enabled=True)
        create_env("qa", enabled=True)
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.upsert_link("p1", "dev", True)
        project_store.upsert_link("p1", "prod", False)
        project_store.upsert_link("p1", "qa", True)
        environment_service.toggle_environment("qa", False)
        with pytest.raises(ConflictError):
            relaxed_service.delete_environment("dev")

    def test_globally_disabled_environment_is_not_relied_on(self, relaxed_service, project_store, create_env):
        create_env("dev")
        project_store.insert_project({"id": "p1", "name": "P1"})
        project_store.upsert_link("p1", "dev", True)
        relaxed_service.delete_environment("dev")
        assert project_store.list_links("p1") == []

    def test_policy_from_settings(self):
        from app.config import Settings
        policy = EnvironmentPolicy.from_settings(
            Settings(min_enabled_environments=2, block_delete_when_linked=False)
        )
        assert policy == EnvironmentPolicy(min_enabled_environments=2, block_delete_when_linked=False)
