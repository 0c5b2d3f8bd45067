import json

import pytest


@pytest.mark.unit
class TestFileService:
    """Tests for loading and saving diagram files."""

    def test_load_json(self, tmp_path):
        from diagsim.services import FileService
        path = tmp_path / "d.json"
        path.write_text(json.dumps({
            "blocks": [{"id": "c", "type": "constant"}],
            "connections": [],
        }))
        assert FileService.load(str(path)).block_ids == ["c"]

    def test_load_yaml(self, tmp_path):
        from diagsim.services import FileService
        path = tmp_path / "d.yml"
        path.write_text("blocks:\n  - {id: c, type: constant, params: {value: 2}}\nruntime: 3\n")
        diagram = FileService.load(str(path))
        assert diagram.blocks[0].params == {"value": 2}
        assert diagram.runtime == 3

    @pytest.mark.parametrize("suffix", [".json", ".yaml"])
    def test_save_and_load(self, builder, tmp_path, suffix):
        from diagsim.services import FileService
        a = builder.add_block("tf", num=[3], den=[1, 3])
        b = builder.add_block("labelSink", name="y")
        builder.connect(a, b)
        path = tmp_path / f"out{suffix}"
        FileService.save(builder.build(), str(path))
        assert FileService.load(str(path)).to_dict() == builder.build().to_dict()

    def test_missing_file(self, tmp_path):
        from diagsim.exceptions import DiagramFileError
        from diagsim.services import FileService
        with pytest.raises(DiagramFileError, match="cannot read"):
            FileService.load(str(tmp_path / "missing.json"))

    @pytest.mark.parametrize("name,content", [
        ("bad.json", "{not json"),
        ("bad.yaml", "blocks: [unclosed"),
    ])
    def test_unparseable(self, tmp_path, name, content):
        from diagsim.exceptions import DiagramFileError
        from diagsim.services import FileService
        path = tmp_path / name
        path.write_text(content)
        with pytest.raises(DiagramFileError, match="cannot parse"):
            FileService.load(str(path))

    def test_not_a_mapping(self, tmp_path):
        from diagsim.exceptions import DiagramFileError
        from diagsim.services import FileService
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(DiagramFileError, match="mapping"):
            FileService.load(str(path))

    def test_bad_structure(self, tmp_path):
        from diagsim.exceptions import DiagramFileError
        from diagsim.services import FileService
        path = tmp_path / "d.json"
        path.write_text(json.dumps({"blocks": [{"id": "a"}]}))
        with pytest.raises(DiagramFileError, match="type"):
            FileService.load(str(path))
