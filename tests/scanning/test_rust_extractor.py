"""Tests for Rust fact extraction (declarations and references)."""

from coupling_insight.dimensions import Strength
from coupling_insight.scanning.models import DeclarationKind, InteractionKind, Visibility
from coupling_insight.scanning.rust_extractor import is_test_attribute, parse_visibility


def _refs(facts, target):
    return [r for r in facts.references if r.target_name == target]


def _interactions(facts, target):
    return {r.interaction for r in _refs(facts, target)}


def _decl(facts, name, kind=None):
    matches = [
        d for d in facts.declarations if d.name == name and (kind is None or d.kind is kind)
    ]
    assert len(matches) == 1, f"expected one declaration {name}, got {matches}"
    return matches[0]


class TestReferences:
    def test_field_access_through_typed_parameter(self, extract):
        facts = extract(
            """
            use crate::models::Player;

            pub fn heal(p: &mut Player) {
                p.health += 10;
            }
            """,
            path="src/game.rs",
        )
        assert InteractionKind.TYPE_USAGE in _interactions(facts, "crate::models::Player")
        (access,) = _refs(facts, "crate::models::Player::health")
        assert access.interaction is InteractionKind.FIELD_ACCESS
        assert access.strength is Strength.INTRUSIVE
        assert access.origin == "heal"
        assert access.location.path == "src/game.rs"
        assert access.location.line == 5

    def test_method_call_on_constructor_binding(self, extract):
        facts = extract(
            """
            use crate::store::Inventory;

            fn run() {
                let inv = Inventory::new();
                inv.add(3);
            }
            """,
            path="src/game.rs",
        )
        assert _interactions(facts, "crate::store::Inventory::new") == {InteractionKind.CALL}
        (call,) = _refs(facts, "crate::store::Inventory::add")
        assert call.interaction is InteractionKind.CALL
        assert call.strength is Strength.FUNCTIONAL

    def test_struct_literal_is_construction(self, extract):
        facts = extract(
            """
            use crate::models::Player;

            fn spawn() -> Player {
                Player { health: 100 }
            }
            """,
            path="src/game.rs",
        )
        assert _interactions(facts, "crate::models::Player") == {
            InteractionKind.TYPE_USAGE,
            InteractionKind.CONSTRUCTION,
        }
        strengths = {r.strength for r in _refs(facts, "crate::models::Player")}
        assert max(strengths) is Strength.INTRUSIVE

    def test_trait_bounds_are_contract(self, extract):
        facts = extract(
            """
            use crate::gfx::Drawable;

            pub fn render<T: Drawable>(item: &T) {}

            pub fn render_all(items: &[Box<dyn Drawable>]) {}
            """,
            path="src/game.rs",
        )
        refs = _refs(facts, "crate::gfx::Drawable")
        assert len(refs) == 2
        assert {r.interaction for r in refs} == {InteractionKind.INTERFACE_BOUND}
        assert {r.strength for r in refs} == {Strength.CONTRACT}

    def test_scoped_free_function_call(self, extract):
        facts = extract(
            """
            fn tick(x: f32) -> f32 {
                crate::util::clamp(x)
            }
            """,
            path="src/physics.rs",
        )
        (call,) = _refs(facts, "crate::util::clamp")
        assert call.interaction is InteractionKind.CALL
        assert call.strength is Strength.FUNCTIONAL

    def test_super_and_self_prefixes(self, extract):
        facts = extract(
            """
            use super::spawner::Spawner;
            use self::inner::Helper;

            fn build(s: Spawner, h: Helper) {}
            """,
            path="src/level/enemy/mod.rs",
        )
        assert _refs(facts, "crate::level::spawner::Spawner")
        assert _refs(facts, "crate::level::enemy::inner::Helper")

    def test_grouped_and_aliased_imports(self, extract):
        facts = extract(
            """
            use crate::models::{Player, stats::Stats as PlayerStats};

            fn show(p: Player, s: PlayerStats) {}
            """,
            path="src/ui.rs",
        )
        assert _refs(facts, "crate::models::Player")
        assert _refs(facts, "crate::models::stats::Stats")

    def test_external_crate_paths(self, extract):
        facts = extract(
            """
            use serde::Serialize;

            fn encode<T: Serialize>(value: &T) -> String {
                serde_json::to_string(value).unwrap()
            }
            """,
            path="src/io.rs",
        )
        assert _refs(facts, "serde::Serialize")
        assert _refs(facts, "serde_json::to_string")

    def test_prelude_and_primitive_types_produce_nothing(self, extract):
        facts = extract(
            """
            fn names(count: usize) -> Vec<String> {
                let mut out = Vec::new();
                out.push(String::new());
                out
            }

            fn lookup(id: u64) -> Option<Result<i32, String>> {
                None
            }
            """,
            path="src/util.rs",
        )
        assert facts.references == ()

    def test_same_file_items_are_not_references(self, extract):
        facts = extract(
            """
            pub struct Cell {
                value: i32,
            }

            pub fn read(c: &Cell) -> i32 {
                c.value
            }

            pub fn make() -> Cell {
                Cell { value: 0 }
            }
            """,
            path="src/grid.rs",
        )
        assert facts.references == ()

    def test_impl_for_foreign_type_is_inherent_impl(self, extract):
        facts = extract(
            """
            use crate::models::Player;

            impl Player {
                pub fn is_alive(&self) -> bool {
                    true
                }
            }
            """,
            path="src/rules.rs",
        )
        assert InteractionKind.INHERENT_IMPL in _interactions(facts, "crate::models::Player")
        assert max(r.strength for r in _refs(facts, "crate::models::Player")) is Strength.INTRUSIVE

    def test_unused_import_becomes_import_reference(self, extract):
        facts = extract("pub use crate::models::User;\n")
        (ref,) = facts.references
        assert ref.target_name == "crate::models::User"
        assert ref.interaction is InteractionKind.IMPORT
        assert ref.origin is None

    def test_glob_import_leaves_names_unresolved(self, extract):
        facts = extract(
            """
            use crate::shapes::*;

            fn area(c: Circle) -> f64 {
                0.0
            }
            """,
            path="src/geometry.rs",
        )
        assert facts.glob_imports == (("crate", "shapes"),)
        (ref,) = _refs(facts, "Circle")
        assert ref.resolved is False
        assert not ref.is_internal


class TestTestOnlyCode:
    SOURCE = """
    pub fn live() {
        crate::db::connect();
    }

    #[cfg(test)]
    mod tests {
        use super::*;

        #[test]
        fn it_works() {
            crate::db::reset();
        }
    }
    """

    def test_references_inside_cfg_test_module(self, extract):
        facts = extract(self.SOURCE, path="src/service.rs")
        (connect,) = _refs(facts, "crate::db::connect")
        (reset,) = _refs(facts, "crate::db::reset")
        assert connect.test_only is False
        assert reset.test_only is True

    def test_declarations_inside_cfg_test_module(self, extract):
        facts = extract(self.SOURCE, path="src/service.rs")
        assert _decl(facts, "live").test_only is False
        assert _decl(facts, "it_works").test_only is True

    def test_use_super_glob_in_tests_is_not_a_glob_import(self, extract):
        facts = extract(self.SOURCE, path="src/service.rs")
        assert facts.glob_imports == ()

    def test_test_attribute_on_free_function(self, extract):
        facts = extract(
            """
            #[test]
            fn standalone() {
                crate::db::reset();
            }
            """
        )
        assert _decl(facts, "standalone").test_only is True
        assert all(r.test_only for r in facts.references)

    def test_unused_import_in_cfg_test_helper_module(self, extract):
        facts = extract(
            """
            pub mod helpers {
                use crate::fixtures::Live;
            }

            #[cfg(test)]
            mod support {
                use crate::fixtures::Sample;
            }
            """,
            path="src/service.rs",
        )
        (live,) = _refs(facts, "crate::fixtures::Live")
        (sample,) = _refs(facts, "crate::fixtures::Sample")
        assert live.interaction is sample.interaction is InteractionKind.IMPORT
        assert live.test_only is False
        assert sample.test_only is True

    def test_cfg_test_use_declaration(self, extract):
        facts = extract(
            """
            #[cfg(test)]
            use crate::mock::Clock;
            use crate::time::Instant;
            """,
            path="src/service.rs",
        )
        assert _refs(facts, "crate::mock::Clock")[0].test_only is True
        assert _refs(facts, "crate::time::Instant")[0].test_only is False


class TestDeclarations:
    SOURCE = """
    pub struct Config {
        pub name: String,
        retries: u32,
    }

    pub struct UserId(pub u64);

    pub(crate) enum Mode {
        Fast,
        Slow,
    }

    pub trait Store {
        fn get(&self, id: u64) -> Option<String>;
    }

    impl Config {
        pub fn new() -> Self {
            Config { name: String::new(), retries: 0 }
        }
    }

    impl Store for Config {
        fn get(&self, id: u64) -> Option<String> {
            None
        }
    }

    fn helper(a: u32, b: &str, c: bool) {}
    """

    def test_struct_fields(self, extract):
        facts = extract(self.SOURCE)
        config = _decl(facts, "Config", DeclarationKind.DATA_TYPE)
        assert config.visibility is Visibility.PUBLIC
        assert config.field_count == 2
        assert config.public_field_count == 1
        assert config.is_newtype is False

    def test_newtype(self, extract):
        user_id = _decl(extract(self.SOURCE), "UserId")
        assert user_id.kind is DeclarationKind.DATA_TYPE
        assert user_id.is_newtype is True
        assert user_id.public_field_count == 1

    def test_enum_visibility(self, extract):
        mode = _decl(extract(self.SOURCE), "Mode")
        assert mode.kind is DeclarationKind.DATA_TYPE
        assert mode.visibility is Visibility.CRATE
        assert mode.visibility.is_container_visible

    def test_trait(self, extract):
        store = _decl(extract(self.SOURCE), "Store", DeclarationKind.INTERFACE)
        assert store.visibility is Visibility.PUBLIC

    def test_impl_blocks(self, extract):
        impls = [
            d for d in extract(self.SOURCE).declarations if d.kind is DeclarationKind.IMPLEMENTATION
        ]
        assert sorted((d.name, d.trait_name or "") for d in impls) == [
            ("Config", ""),
            ("Config", "Store"),
        ]

    def test_methods_record_their_owner(self, extract):
        facts = extract(self.SOURCE)
        new = _decl(facts, "new")
        assert new.owner == "Config"
        assert new.is_method
        assert new.qualified_name == "Config::new"
        owners = sorted(d.owner for d in facts.declarations if d.name == "get")
        assert owners == ["Config", "Store"]

    def test_free_function_parameters(self, extract):
        helper = _decl(extract(self.SOURCE), "helper")
        assert helper.owner is None
        assert helper.visibility is Visibility.PRIVATE
        assert helper.param_count == 3
        assert helper.primitive_param_count == 3

    def test_self_is_not_a_parameter(self, extract):
        new = _decl(extract(self.SOURCE), "new")
        assert new.param_count == 0

    def test_serde_derive(self, extract):
        facts = extract(
            """
            #[derive(Debug, Serialize, Deserialize)]
            pub struct Payload {
                pub id: u64,
            }
            """
        )
        assert _decl(facts, "Payload").derives_serde is True


class TestHelpers:
    def test_parse_visibility(self):
        assert parse_visibility("pub") is Visibility.PUBLIC
        assert parse_visibility("pub(crate)") is Visibility.CRATE
        assert parse_visibility("pub ( super )") is Visibility.SUPER
        assert parse_visibility("pub(in crate::level)") is Visibility.RESTRICTED
        assert parse_visibility("pub(self)") is Visibility.PRIVATE

    def test_is_test_attribute(self):
        assert is_test_attribute("#[test]")
        assert is_test_attribute("#[tokio::test]")
        assert is_test_attribute("#[cfg(test)]")
        assert is_test_attribute("#![cfg(test)]")
        assert is_test_attribute("#[cfg(all(test, feature = \"slow\"))]")
        assert not is_test_attribute("#[derive(Debug)]")
        assert not is_test_attribute("#[cfg(feature = \"testing\")]")
