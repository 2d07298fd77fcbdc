# tests/test_service.py
"""Tests for RegistryService operations."""

import pytest

from keyreg import (
    AssignRequest,
    LineageEdge,
    RegistryConfig,
    RegistryService,
    RegistrySaturated,
    StorageUnavailable,
    UnknownKey,
)
from keyreg.errors import InvalidConfiguration
from keyreg.service import compose_name, original_identifier


def read_lines(path):
    return path.read_text().splitlines()


class TestNaming:
    """Test filename composition and root extraction."""

    def test_compose_with_extension(self):
        """Test name with an extension."""
        assert compose_name("gensp.pre", "zR56", "fa") == "gensp.pre.zR56.fa"

    def test_compose_without_extension(self):
        """Test name without an extension."""
        assert compose_name("gensp.pre", "zR56") == "gensp.pre.zR56"

    def test_identifier_from_keyed_name(self):
        """Test key is taken from an already keyed name."""
        assert original_identifier("gensp.pre.zR56.fa", "gensp.pre") == "zR56"

    def test_identifier_ignores_directory(self):
        """Test directories are ignored."""
        assert original_identifier("/data/run1/gensp.pre.zR56.fa", "gensp.pre") == "zR56"

    def test_identifier_from_other_extension(self):
        """Test a different extension still yields the key."""
        assert original_identifier("gensp.pre.zR56.gff3.gz", "gensp.pre") == "zR56"

    def test_identifier_literal_when_unmatched(self):
        """Test unkeyed names are used as they are."""
        assert original_identifier("initial_file.fa", "gensp.pre") == "initial_file.fa"

    def test_prefix_is_not_a_regex(self):
        """Test dots in the prefix match literally."""
        assert original_identifier("gensppre.zR56.fa", "gensp.pre") == "gensppre.zR56.fa"


class TestAssignKey:
    """Test keying files."""

    def test_rename_scenario(self, make_service, config):
        """Test first keying then re-keying the same file."""
        service = make_service("zR56")

        first = service.assign_key(AssignRequest(
            original_name="initial_file.fa", prefix="gensp.pre", extension="fa",
        ))

        assert first.key == "zR56"
        assert first.minted
        assert first.new_name == "gensp.pre.zR56.fa"
        assert read_lines(config.lineage_path) == ["zR56\tinitial_file.fa"]

        second = service.assign_key(AssignRequest(
            original_name="gensp.pre.zR56.fa", prefix="gensp.pre", extension="fa",
            key="zR56",
        ))

        assert second.key == "zR56"
        assert not second.minted
        assert second.new_name == "gensp.pre.zR56.fa"
        assert read_lines(config.lineage_path) == [
            "zR56\tinitial_file.fa",
            "zR56\tzR56",
        ]
        assert read_lines(config.main_path) == [
            "zR56\tgensp.pre.zR56.fa",
            "zR56\tgensp.pre.zR56.fa",
        ]

        report = service.report_lineage("zR56")
        assert report.chains == {"zR56": ["initial_file.fa"]}

    def test_minted_key_avoids_existing(self, make_service, config):
        """Test a minted key skips keys already registered."""
        config.main_path.write_text("zR56\tgensp.pre.zR56.fa\n")
        service = make_service("zR56", "k9Lm")

        result = service.assign_key(AssignRequest("initial_file.fa", "gensp.pre", "fa"))

        assert result.key == "k9Lm"

    def test_extension_leading_dot_stripped(self, make_service):
        """Test leading dot on the extension is dropped."""
        result = make_service("zR56").assign_key(
            AssignRequest("initial_file.fa", "gensp.pre", ".fa")
        )
        assert result.new_name == "gensp.pre.zR56.fa"

    def test_rekey_to_new_name_is_accepted(self, make_service, config, caplog):
        """Test re-keying under a new name warns but succeeds."""
        config.main_path.write_text("zR56\tgensp.pre.zR56.fa\n")

        with caplog.at_level("WARNING"):
            result = make_service().assign_key(AssignRequest(
                "gensp.pre.zR56.fa", "gensp.pre", "gff", key="zR56",
            ))

        assert result.new_name == "gensp.pre.zR56.gff"
        assert "Re-keying zR56" in caplog.text

    def test_rejects_whitespace_in_key(self, make_service):
        """Test keys with whitespace are rejected."""
        with pytest.raises(InvalidConfiguration):
            make_service().assign_key(AssignRequest("a.fa", "gensp.pre", key="z 56"))

    def test_rejects_short_length(self, make_service, config):
        """Test length below two is rejected."""
        with pytest.raises(InvalidConfiguration):
            make_service().assign_key(AssignRequest("a.fa", "gensp.pre", length=1))
        assert not config.main_path.exists()

    def test_rejects_zero_length(self, make_service, config):
        """Test length zero is rejected, not replaced by the default."""
        with pytest.raises(InvalidConfiguration):
            make_service().assign_key(AssignRequest("a.fa", "gensp.pre", length=0))
        assert not config.main_path.exists()

    @pytest.mark.parametrize("original_name", [".", "/"])
    def test_rejects_name_without_basename(self, make_service, config, original_name):
        """Test a name with no basename is rejected before any write."""
        with pytest.raises(InvalidConfiguration):
            make_service("zR56").assign_key(AssignRequest(original_name, "gensp.pre", "fa"))
        assert not config.main_path.exists()
        assert not config.lineage_path.exists()
        assert not config.log_path.exists()

    def test_move_renames_file(self, make_service, temp_dir):
        """Test move renames the file on disk."""
        source = temp_dir / "initial_file.fa"
        source.write_text(">seq\nACGT\n")

        result = make_service("zR56").assign_key(AssignRequest(
            str(source), "gensp.pre", "fa", move=True,
        ))

        assert result.new_path == temp_dir / "gensp.pre.zR56.fa"
        assert result.new_path.read_text() == ">seq\nACGT\n"
        assert not source.exists()

    def test_move_missing_file_writes_nothing(self, make_service, temp_dir, config):
        """Test a missing source file leaves the registry untouched."""
        with pytest.raises(StorageUnavailable):
            make_service("zR56").assign_key(AssignRequest(
                str(temp_dir / "nope.fa"), "gensp.pre", "fa", move=True,
            ))
        assert not config.main_path.exists()
        assert not config.lineage_path.exists()

    def test_operation_logged_with_comment(self, make_service, config):
        """Test the operation log line carries the comment."""
        make_service("zR56").assign_key(AssignRequest(
            "initial_file.fa", "gensp.pre", "fa", comment="first  assembly",
        ))

        lines = read_lines(config.log_path)
        assert len(lines) == 1
        assert "\tassign\tzR56\t" in lines[0]
        assert lines[0].endswith("# first assembly")


class TestMintSimpleKeys:
    """Test standalone key minting."""

    def test_mint_records_sentinel(self, make_service, config):
        """Test standalone keys map to NONE."""
        keys = make_service("bcdf", "ghjk").mint_simple_keys(2)

        assert keys == ["bcdf", "ghjk"]
        assert read_lines(config.main_path) == ["bcdf\tNONE", "ghjk\tNONE"]
        assert not config.lineage_path.exists()

    def test_standalone_key_has_trivial_lineage(self, make_service):
        """Test a standalone key resolves to itself."""
        service = make_service("bcdf")
        service.mint_simple_keys(1)

        assert service.report_lineage("bcdf").chains == {"bcdf": ["bcdf"]}

    def test_saturation_persists_nothing(self, make_service, config):
        """Test a saturated batch is not saved."""
        config.main_path.write_text("bc\tNONE\n")
        service = make_service("df", "bc", "bc", max_keys_to_try=2)

        with pytest.raises(RegistrySaturated) as exc_info:
            service.mint_simple_keys(2, length=2)

        assert exc_info.value.minted == ["df"]
        assert read_lines(config.main_path) == ["bc\tNONE"]

    def test_rejects_zero_length(self, make_service, config):
        """Test length zero is rejected, not replaced by the default."""
        with pytest.raises(InvalidConfiguration):
            make_service().mint_simple_keys(1, length=0)
        assert not config.main_path.exists()

    def test_missing_directory(self, temp_dir):
        """Test a missing registry directory."""
        service = RegistryService(RegistryConfig(base_dir=temp_dir / "missing"))
        with pytest.raises(StorageUnavailable):
            service.mint_simple_keys(1)


class TestAppendOnly:
    """Existing records survive every operation byte for byte."""

    def test_files_only_grow(self, make_service, config):
        """Test every file keeps its old bytes as a prefix."""
        service = make_service("zR56", "k9Lm", "bcdf", "ghjk")
        service.assign_key(AssignRequest("initial_file.fa", "gensp.pre", "fa"))
        service.set_attribute("zR56", "species", "gensp")
        paths = [config.main_path, config.lineage_path, config.log_path, config.attributes_path]
        before = {p: p.read_bytes() for p in paths}

        service.assign_key(AssignRequest("gensp.pre.zR56.fa", "gensp.pre", "fa"))
        service.mint_simple_keys(2)
        service.set_attribute("k9Lm", "species", "gensp")

        for path in paths:
            after = path.read_bytes()
            assert after.startswith(before[path])
            assert len(after) > len(before[path])


class TestReportLineage:
    """Test lineage reporting."""

    @pytest.fixture
    def chained(self, make_service):
        """A -> B -> C -> D, each step renaming the previous output."""
        service = make_service("Bbbb", "Cccc", "Dddd")
        name = "a.txt"
        for _ in range(3):
            name = service.assign_key(AssignRequest(name, "p", "txt")).new_name
        return service

    def test_round_trip(self, chained):
        """Test chains walk back to the first name."""
        assert chained.report_lineage("Dddd").chains == {"Dddd": ["Cccc", "Bbbb", "a.txt"]}
        assert chained.report_lineage("Cccc").chains == {"Cccc": ["Bbbb", "a.txt"]}

    def test_pattern_matches_several_keys(self, chained):
        """Test a pattern resolves every matching key."""
        report = chained.report_lineage("d")
        assert report.chains == {"Dddd": ["Cccc", "Bbbb", "a.txt"]}

        report = chained.report_lineage("c")
        assert set(report.chains) == {"Cccc"}

    def test_pattern_returns_touching_edges(self, chained):
        """Test a pattern returns edges on either side of the key."""
        report = chained.report_lineage("Cccc")

        assert not report.wildcard
        assert report.edges == {LineageEdge("Cccc", "Bbbb"), LineageEdge("Dddd", "Cccc")}

    def test_wildcard_returns_all_edges(self, chained):
        """Test the wildcard returns every edge."""
        report = chained.report_lineage("ALL")

        assert report.wildcard
        assert report.edges == {
            LineageEdge("Bbbb", "a.txt"),
            LineageEdge("Cccc", "Bbbb"),
            LineageEdge("Dddd", "Cccc"),
        }

    def test_wildcard_is_idempotent(self, chained):
        """Test the wildcard ignores case."""
        assert chained.report_lineage("all").edges == chained.report_lineage("ALL").edges

    def test_no_match(self, chained):
        """Test a query with no matches."""
        report = chained.report_lineage("zzz")
        assert report.chains == {}
        assert report.ok

    def test_exact_policy(self, make_service):
        """Test exact matching skips near misses."""
        service = make_service("Bbbb", "Bbbc", match_policy="exact")
        service.mint_simple_keys(2)

        assert set(service.report_lineage("Bbbb").chains) == {"Bbbb"}

    def test_cycle_reported_per_key(self, make_service, config):
        """Test a cycle is reported for its keys only."""
        config.lineage_path.write_text("x1\tx2\nx2\tx1\nx3\troot.fa\n")

        report = make_service().report_lineage("x")

        assert set(report.errors) == {"x1", "x2"}
        assert report.chains == {"x3": ["root.fa"]}
        assert not report.ok

    def test_empty_query_rejected(self, make_service):
        """Test an empty query is rejected."""
        with pytest.raises(InvalidConfiguration):
            make_service().report_lineage("")


class TestAttributes:
    """Test attribute delegation."""

    def test_set_and_get(self, make_service):
        """Test latest attribute values are returned."""
        service = make_service("bcdf")
        service.mint_simple_keys(1)

        service.set_attribute("bcdf", "species", "gensp")
        service.set_attribute("bcdf", "species", "gensp2")
        service.set_attribute("bcdf", "stage", "raw reads")

        assert service.get_attributes("bcdf") == {"species": "gensp2", "stage": "raw reads"}

    def test_unknown_key(self, make_service):
        """Test attributes of unregistered keys."""
        with pytest.raises(UnknownKey):
            make_service().set_attribute("nope", "species", "gensp")
        with pytest.raises(UnknownKey):
            make_service().get_attributes("nope")

    def test_find_keys(self, make_service):
        """Test keys are found by current attribute value."""
        service = make_service("bcdf", "ghjk", "lmnp")
        service.mint_simple_keys(3)
        service.set_attribute("ghjk", "species", "gensp")
        service.set_attribute("bcdf", "species", "gensp")
        service.set_attribute("lmnp", "species", "gensp")
        service.set_attribute("lmnp", "species", "other")

        assert service.find_keys("species", "gensp") == ["bcdf", "ghjk"]
        assert service.find_keys("stage", "raw") == []

    def test_find_keys_ignores_unregistered(self, make_service, config):
        """Test attributes of unregistered keys are not found."""
        config.attributes_path.write_text("gone\tspecies\tgensp\n")
        assert make_service().find_keys("species", "gensp") == []
