"""
Unit tests for the command line interface.
"""

import json

import pytest

from src.cli import build_parser, main, run_command
from tests.conftest import manifest


class TestParser:

    def test_upload_options(self):
        args = build_parser().parse_args(["upload", "project.zip", "--entrypoint", "main.rvt", "--wait"])

        assert args.command == "upload"
        assert args.path == "project.zip"
        assert args.entrypoint == "main.rvt"
        assert args.wait is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRunCommand:

    @pytest.mark.asyncio
    async def test_list(self, model_service, fake_aps):
        fake_aps.add_object("house.rvt")

        result = await run_command(build_parser().parse_args(["list"]), model_service)

        assert [m["name"] for m in result["models"]] == ["house.rvt"]

    @pytest.mark.asyncio
    async def test_upload_and_wait(self, model_service, fake_aps, tmp_path):
        path = tmp_path / "tower.ifc"
        path.write_bytes(b"ISO-10303-21;" * 10)

        args = build_parser().parse_args(["upload", str(path), "--wait"])
        job_urn = None

        # Queue the manifest once the URN is known by wrapping start_translation
        submit = model_service.derivative.start_translation

        async def start_and_queue(urn, root_filename=None):
            nonlocal job_urn
            job_urn = urn
            fake_aps.queue_manifests(urn, manifest("inprogress", "50% complete"), manifest("success"))
            return await submit(urn, root_filename)

        model_service.derivative.start_translation = start_and_queue

        result = await run_command(args, model_service)

        assert result["name"] == "tower.ifc"
        assert result["urn"] == job_urn
        assert result["status"] == "success"
        assert fake_aps.uploads["tower.ifc"] == b"ISO-10303-21;" * 10


class TestMain:

    def test_missing_upload_file(self, tmp_path, capsys):
        missing = tmp_path / "missing.rvt"

        assert main(["upload", str(missing)]) == 1

        error = json.loads(capsys.readouterr().err)["error"]
        assert error["code"] == "FILE_ERROR"
        assert str(missing) in error["message"]
