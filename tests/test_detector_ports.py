"""Tests for PortDetector."""

import pytest

from conftest import package_json
from deployplan.detectors.ports import PortDetector


@pytest.fixture
def detector() -> PortDetector:
    return PortDetector()


class TestSourceScan:
    @pytest.mark.parametrize(
        "framework,files,port,via",
        [
            ("express", {"server.js": "app.listen(4000, () => {});\n"}, 4000, "source:server.js"),
            (
                "fastify",
                {"src/index.ts": "const PORT = process.env.PORT || 8080;\n"},
                8080,
                "source:src/index.ts",
            ),
            (
                "fastapi",
                {"main.py": 'uvicorn.run(app, host="0.0.0.0", port=8001)\n'},
                8001,
                "source:main.py",
            ),
            (
                "django",
                {"gunicorn.conf.py": 'bind = "0.0.0.0:9000"\n'},
                9000,
                "source:gunicorn.conf.py",
            ),
            ("go", {"main.go": 'http.ListenAndServe(":8081", nil)\n'}, 8081, "source:main.go"),
            (
                "go-gin",
                {"cmd/api/main.go": 'r.Run(":7000")\n'},
                7000,
                "source:cmd/api/main.go",
            ),
            (
                "rails",
                {"config/puma.rb": 'port ENV.fetch("PORT") { 3001 }\n'},
                3001,
                "source:config/puma.rb",
            ),
            (
                "spring-boot",
                {"src/main/resources/application.properties": "server.port=8085\n"},
                8085,
                "source:src/main/resources/application.properties",
            ),
        ],
    )
    def test_listen_patterns(self, tmp_path, write_files, detector, make_app, framework, files, port, via):
        """Each language's listen call yields its literal port."""
        write_files(tmp_path, files)

        found = detector.detect(tmp_path, make_app("svc", framework=framework))

        assert found is not None
        assert found.port == port
        assert found.detected_via == via

    def test_out_of_range_is_ignored(self, tmp_path, write_files, detector, make_app):
        """Ports above 65535 are not ports."""
        write_files(tmp_path, {"server.js": "app.listen(99999);\n"})

        assert detector.detect(tmp_path, make_app("svc")) is None

    def test_language_from_manifest(self, tmp_path, write_files, detector, make_app):
        """Container-only apps still get a language from whatever manifest is present."""
        write_files(tmp_path, {"requirements.txt": "aiohttp\n", "app.py": "web.run_app(app, port=8088)\n"})

        found = detector.detect(tmp_path, make_app("svc", framework="dockerfile"))

        assert found.port == 8088


class TestScripts:
    def test_start_script_flag(self, tmp_path, write_files, detector, make_app):
        """A -p flag in the start script sets the port."""
        write_files(tmp_path, {"package.json": package_json(scripts={"start": "next start -p 4001"})})

        found = detector.detect(tmp_path, make_app("web", framework="nextjs"))

        assert found.port == 4001
        assert found.detected_via == "package.json:scripts.start"

    def test_script_precedence(self, tmp_path, write_files, detector, make_app):
        """The dev script is checked before start."""
        write_files(
            tmp_path,
            {"package.json": package_json(scripts={"dev": "vite --port 5173", "start": "node ."})},
        )

        found = detector.detect(tmp_path, make_app("web", framework="vite-react"))

        assert found.port == 5173
        assert found.detected_via == "package.json:scripts.dev"

    def test_procfile_placeholder(self, tmp_path, write_files, detector, make_app):
        """$PORT in a Procfile falls back to the framework default."""
        write_files(tmp_path, {"Procfile": "web: gunicorn app:app --bind 0.0.0.0:$PORT\nworker: celery\n"})

        found = detector.detect(tmp_path, make_app("svc", framework="flask"))

        assert found.port == 8000
        assert found.detected_via == "Procfile:web:$PORT"

    def test_placeholder_without_default(self, tmp_path, write_files, detector, make_app):
        """$PORT with no framework default yields nothing."""
        write_files(tmp_path, {"Procfile": "web: ./bin/server --listen :${PORT}\n"})

        assert detector.detect(tmp_path, make_app("svc", framework="go")) is None

    def test_procfile_env_assignment(self, tmp_path, write_files, detector, make_app):
        """An inline PORT= assignment in a Procfile is used."""
        write_files(tmp_path, {"Procfile": "web: PORT=5050 bundle exec puma\n"})

        found = detector.detect(tmp_path, make_app("svc", framework="rails"))

        assert found.port == 5050


class TestNothingFound:
    def test_empty_directory(self, tmp_path, detector, make_app):
        """No sources means no port."""
        assert detector.detect(tmp_path, make_app("svc", framework="dockerfile")) is None

    def test_language_for(self, tmp_path, write_files, make_app):
        """Language comes from the framework, then from manifests."""
        write_files(tmp_path, {"go.mod": "module x\n"})

        assert PortDetector.language_for(tmp_path, make_app("a", framework="phoenix")) == "elixir"
        assert PortDetector.language_for(tmp_path, make_app("a", framework="dockerfile")) == "go"
