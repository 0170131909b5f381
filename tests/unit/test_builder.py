"""Tests for the GraphBuilder class."""

import pytest

from src.buildgraph.config import ResolutionConfig
from src.buildgraph.dependency.builder import GraphBuilder
from src.buildgraph.models.dependency import Requirement
from src.buildgraph.models.diagnostics import (
    DisabledByDeclaration,
    RequirementCause,
    UnsatisfiedRequirement,
)
from src.buildgraph.models.package import PackageType
from src.buildgraph.utils.exceptions import AmbiguousProvidesError, DuplicateDefinitionError


class TestGraphBuilderDeclarations:
    """Registration through the builder."""

    @pytest.fixture
    def builder(self):
        """Create a builder with a fresh registry."""
        return GraphBuilder()

    def test_declare_registers_package(self, builder, make_declaration):
        """Declarations become pre-phase packages with sequential ids."""
        ids = builder.declare_all(
            [make_declaration("a"), make_declaration("b", type="program", dirname="apps/b")]
        )

        assert ids == [0, 1]
        package = builder.registry.get(1)
        assert package.name == "b"
        assert package.package_type == PackageType.PROGRAM
        assert package.dirname == "apps/b"

    def test_duplicate_definition_rejected(self, builder, make_declaration):
        """The same name in the same directory cannot be declared twice."""
        builder.declare(make_declaration("unix", dirname="libs/unix"))

        with pytest.raises(DuplicateDefinitionError) as exc_info:
            builder.declare(make_declaration("unix", dirname="libs/unix"))

        assert exc_info.value.name == "unix"
        assert exc_info.value.existing_id == 0

    def test_same_name_in_other_directory_allowed(self, builder, make_declaration):
        """Only the (name, dirname) pair has to be unique."""
        builder.declare(make_declaration("unix", dirname="libs/unix"))
        package_id = builder.declare(make_declaration("unix", dirname="vendor/unix"))

        assert package_id == 1

    def test_duplicate_definition_allowed_by_config(self, make_declaration):
        """The duplicate policy can be relaxed."""
        builder = GraphBuilder(config=ResolutionConfig(allow_duplicate_definitions=True))
        builder.declare(make_declaration("unix"))
        builder.declare(make_declaration("unix"))

        assert len(builder.registry) == 2

    def test_disabled_declaration(self, builder, make_declaration):
        """enabled: false registers a disabled package with a reason."""
        package_id = builder.declare(make_declaration("legacy", enabled=False))
        package = builder.registry.get(package_id)

        assert package.disabled is True
        assert package.disabled_reasons == [DisabledByDeclaration("legacy", package_id)]


class TestGraphBuilderResolution:
    """Resolution of requirement names into edges."""

    @pytest.fixture
    def builder(self):
        """Create a builder with a fresh registry."""
        return GraphBuilder()

    def test_single_provider_resolved(self, builder, make_declaration):
        """A requirement with one provider becomes an edge to it."""
        builder.declare_all([make_declaration("a", "b"), make_declaration("b")])
        packages = builder.resolve()

        a, b = packages
        assert a.requires == [b]
        assert b.requires == []

    def test_edges_keep_declaration_order_and_flags(self, builder, make_declaration):
        """Edge order and flags follow the declaration."""
        builder.declare_all(
            [
                make_declaration(
                    "app",
                    "c",
                    {"name": "a", "link": False, "syntax": True, "options": {"flags": ["-g"]}},
                    "b",
                ),
                make_declaration("a"),
                make_declaration("b"),
                make_declaration("c"),
            ]
        )
        app = builder.resolve()[0]

        assert [package.name for package in app.requires] == ["c", "a", "b"]
        edge = app.dependencies[1]
        assert edge.link is False
        assert edge.syntax is True
        assert edge.optional is False
        assert edge.options == {"flags": ["-g"]}

    def test_resolves_by_provides(self, builder, make_declaration):
        """Requirements name what a package provides, not its name."""
        builder.declare_all(
            [make_declaration("app", "ssl"), make_declaration("openssl", provides="ssl")]
        )
        app, openssl = builder.resolve()

        assert app.requires == [openssl]

    def test_missing_requirement_disables_package(self, builder, make_declaration):
        """A non-optional requirement nobody provides disables the requirer."""
        builder.declare(make_declaration("tool", "missing-lib"))
        (tool,) = builder.resolve()

        expected = UnsatisfiedRequirement("tool", 0, "missing-lib", RequirementCause.MISSING)
        assert tool.disabled is True
        assert tool.disabled_reasons == [expected]
        assert builder.diagnostics.unsatisfied == [expected]
        assert tool.dependencies == []

    def test_missing_optional_requirement_dropped(self, builder, make_declaration):
        """An optional requirement nobody provides is dropped silently."""
        builder.declare(make_declaration("log", {"name": "syslog", "optional": True}))
        (log,) = builder.resolve()

        assert log.disabled is False
        assert log.dependencies == []
        assert len(builder.diagnostics.dropped) == 1
        assert builder.diagnostics.dropped[0].required_name == "syslog"
        assert builder.diagnostics.dropped[0].cause == RequirementCause.MISSING

    def test_ambiguous_provides_fails(self, builder, make_declaration):
        """Two enabled providers of the same name cannot be told apart."""
        builder.declare_all(
            [
                make_declaration("foo-a", provides="foo"),
                make_declaration("foo-b", provides="foo"),
                make_declaration("c", "foo"),
            ]
        )

        with pytest.raises(AmbiguousProvidesError) as exc_info:
            builder.resolve()

        assert exc_info.value.required_name == "foo"
        assert exc_info.value.requirer == "c"
        assert exc_info.value.candidates == ["foo-a", "foo-b"]

    def test_ambiguity_resolved_to_only_enabled_provider(self, builder, make_declaration):
        """Disabled providers never win resolution."""
        builder.declare_all(
            [
                make_declaration("foo-a", provides="foo", enabled=False),
                make_declaration("foo-b", provides="foo"),
                make_declaration("c", "foo"),
            ]
        )
        foo_a, foo_b, c = builder.resolve()

        assert c.requires == [foo_b]
        assert c.disabled is False

    def test_ambiguity_sees_providers_disabled_by_missing_requirements(
        self, builder, make_declaration
    ):
        """A provider disabled for a missing requirement is out of the race, whatever the order."""
        builder.declare_all(
            [
                make_declaration("c", "foo"),
                make_declaration("foo-a", "nowhere", provides="foo"),
                make_declaration("foo-b", provides="foo"),
            ]
        )
        c, foo_a, foo_b = builder.resolve()

        assert foo_a.disabled is True
        assert c.requires == [foo_b]

    def test_all_providers_disabled(self, builder, make_declaration):
        """With several providers all disabled, the requirement is unsatisfiable."""
        builder.declare_all(
            [
                make_declaration("foo-a", provides="foo", enabled=False),
                make_declaration("foo-b", provides="foo", enabled=False),
                make_declaration("c", "foo"),
                make_declaration("d", {"name": "foo", "optional": True}),
            ]
        )
        _, _, c, d = builder.resolve()

        assert c.disabled is True
        assert c.disabled_reasons[0].cause == RequirementCause.DISABLED
        assert d.disabled is False
        assert d.dependencies == []

    def test_single_disabled_provider_still_linked(self, builder, make_declaration):
        """One disabled provider is linked; the sorter propagates its state."""
        builder.declare_all(
            [make_declaration("a", "b"), make_declaration("b", enabled=False)]
        )
        a, b = builder.resolve()

        assert a.requires == [b]
        assert a.disabled is False

    def test_self_requirement_kept(self, builder, make_declaration):
        """A package requiring itself keeps the edge for cycle reporting."""
        builder.declare(make_declaration("loop", "loop"))
        (loop,) = builder.resolve()

        assert loop.requires == [loop]

    def test_add_requirement_on_registered_package(self, builder):
        """Packages registered directly on the registry can receive requirements."""
        a = builder.registry.register("a", ".", "ocp", PackageType.LIBRARY)
        b = builder.registry.register("b", ".", "ocp", PackageType.LIBRARY)
        builder.add_requirement(a, Requirement(target="b", link=False))

        packages = builder.resolve()

        assert packages[a].requires == [packages[b]]
        assert packages[a].dependencies[0].link is False
