"""Ordered framework detection rules.

Order is significant: meta-frameworks come before the libraries they are
built on, and the first matching rule wins.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from deployplan.manifests.readers import ManifestKind
from deployplan.models.analysis import AppType, BuildPack


class MatchMode(StrEnum):
    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class FrameworkRule:
    """How to recognise one framework from a manifest."""

    framework: str
    manifest: ManifestKind
    deps: tuple[str, ...]
    default_port: int
    type: AppType = AppType.BACKEND
    build_pack: BuildPack = BuildPack.NIXPACKS
    match_mode: MatchMode = MatchMode.ANY
    exclude_deps: tuple[str, ...] = ()
    alt_manifest: ManifestKind | None = None
    # Content fallbacks for manifests that do not name dependencies reliably
    pattern: re.Pattern[str] | None = None
    alt_pattern: re.Pattern[str] | None = None
    build_command: str | None = None
    publish_directory: str | None = None


def _vite(framework: str, library: str, exclude: tuple[str, ...]) -> FrameworkRule:
    return FrameworkRule(
        framework=framework,
        manifest=ManifestKind.PACKAGE_JSON,
        deps=("vite", library),
        match_mode=MatchMode.ALL,
        exclude_deps=exclude,
        build_pack=BuildPack.STATIC,
        default_port=80,
        build_command="npm run build",
        publish_directory="dist",
        type=AppType.FRONTEND,
    )


FRAMEWORK_RULES: tuple[FrameworkRule, ...] = (
    # Node.js
    FrameworkRule("nestjs", ManifestKind.PACKAGE_JSON, ("@nestjs/core",), 3000),
    FrameworkRule("nextjs", ManifestKind.PACKAGE_JSON, ("next",), 3000, AppType.FULLSTACK),
    FrameworkRule("nuxt", ManifestKind.PACKAGE_JSON, ("nuxt",), 3000, AppType.FULLSTACK),
    FrameworkRule("remix", ManifestKind.PACKAGE_JSON, ("@remix-run/node",), 3000, AppType.FULLSTACK),
    FrameworkRule("astro", ManifestKind.PACKAGE_JSON, ("astro",), 4321, AppType.FRONTEND),
    FrameworkRule("sveltekit", ManifestKind.PACKAGE_JSON, ("@sveltejs/kit",), 3000, AppType.FULLSTACK),
    _vite("vite-react", "react", ("next", "@remix-run/react")),
    _vite("vite-vue", "vue", ("nuxt",)),
    _vite("vite-svelte", "svelte", ("@sveltejs/kit",)),
    FrameworkRule(
        framework="create-react-app",
        manifest=ManifestKind.PACKAGE_JSON,
        deps=("react-scripts",),
        build_pack=BuildPack.STATIC,
        default_port=80,
        build_command="npm run build",
        publish_directory="build",
        type=AppType.FRONTEND,
    ),
    FrameworkRule("fastify", ManifestKind.PACKAGE_JSON, ("fastify",), 3000),
    FrameworkRule("hono", ManifestKind.PACKAGE_JSON, ("hono",), 3000),
    FrameworkRule(
        framework="express",
        manifest=ManifestKind.PACKAGE_JSON,
        deps=("express",),
        default_port=3000,
        exclude_deps=("@nestjs/core", "next"),
    ),
    # Python
    FrameworkRule(
        framework="django",
        manifest=ManifestKind.REQUIREMENTS_TXT,
        alt_manifest=ManifestKind.PYPROJECT_TOML,
        deps=("Django", "django"),
        default_port=8000,
    ),
    FrameworkRule(
        framework="fastapi",
        manifest=ManifestKind.REQUIREMENTS_TXT,
        alt_manifest=ManifestKind.PYPROJECT_TOML,
        deps=("fastapi",),
        default_port=8000,
    ),
    FrameworkRule(
        framework="flask",
        manifest=ManifestKind.REQUIREMENTS_TXT,
        alt_manifest=ManifestKind.PYPROJECT_TOML,
        deps=("Flask", "flask"),
        default_port=5000,
    ),
    # Go
    FrameworkRule(
        "go-fiber", ManifestKind.GO_MOD, ("github.com/gofiber/fiber/v2", "github.com/gofiber/fiber"), 3000
    ),
    FrameworkRule("go-gin", ManifestKind.GO_MOD, ("github.com/gin-gonic/gin",), 8080),
    FrameworkRule(
        "go-echo", ManifestKind.GO_MOD, ("github.com/labstack/echo/v4", "github.com/labstack/echo"), 8080
    ),
    FrameworkRule("go", ManifestKind.GO_MOD, (), 8080),
    # Ruby
    FrameworkRule(
        "rails", ManifestKind.GEMFILE, ("rails",), 3000, pattern=re.compile(r"""gem\s+['"]rails['"]""")
    ),
    FrameworkRule(
        "sinatra", ManifestKind.GEMFILE, ("sinatra",), 4567, pattern=re.compile(r"""gem\s+['"]sinatra['"]""")
    ),
    # Rust
    FrameworkRule(
        "rust-axum", ManifestKind.CARGO_TOML, ("axum",), 3000, pattern=re.compile(r"^axum\s*=", re.MULTILINE)
    ),
    FrameworkRule(
        "rust-actix",
        ManifestKind.CARGO_TOML,
        ("actix-web",),
        8080,
        pattern=re.compile(r"^actix-web\s*=", re.MULTILINE),
    ),
    FrameworkRule("rust", ManifestKind.CARGO_TOML, (), 8080),
    # PHP
    FrameworkRule("laravel", ManifestKind.COMPOSER_JSON, ("laravel/framework",), 8000),
    FrameworkRule("symfony", ManifestKind.COMPOSER_JSON, ("symfony/framework-bundle",), 8000),
    # Elixir
    FrameworkRule("phoenix", ManifestKind.MIX_EXS, (":phoenix",), 4000, pattern=re.compile(r"\{:phoenix,")),
    # Java / Kotlin
    FrameworkRule(
        framework="spring-boot",
        manifest=ManifestKind.POM_XML,
        alt_manifest=ManifestKind.BUILD_GRADLE,
        deps=("spring-boot-starter",),
        default_port=8080,
        pattern=re.compile(r"<artifactId>spring-boot-starter"),
        alt_pattern=re.compile(r"org\.springframework\.boot"),
    ),
)

# Compose filenames accepted by the container fallback, in lookup order
COMPOSE_FILES: tuple[str, ...] = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)

DOCKERFILE_DEFAULT_PORT = 3000
COMPOSE_DEFAULT_PORT = 80
