"""
Tech Stack Detector for RepoLens

Finds the technologies a repository uses by probing for well-known files:
- package.json: declared npm dependencies, matched against a package table
- Python manifests: first one found marks the repo as Python; the
  requirements.txt text is also scanned for common frameworks
- Marker files: Dockerfile, CI workflow directories, other language manifests

Every probe is independent. A probe that fails (missing file, bad JSON,
rate limit) counts as "not detected" and never fails the detection.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Protocol

from ..schemas import Confidence, DetectedTechnology

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

MAX_TECHNOLOGIES = 20


@dataclass(frozen=True)
class TechSignature:
    """What a matched package or file stands for."""
    name: str
    category: str
    icon: str | None = None

    def detected(self, confidence: Confidence, version: str | None = None) -> DetectedTechnology:
        return DetectedTechnology(
            name=self.name,
            category=self.category,
            confidence=confidence,
            version=version,
            icon=self.icon,
        )


NODE_RUNTIME = TechSignature("Node.js", "Runtime", "🟢")
PYTHON_LANGUAGE = TechSignature("Python", "Language", "🐍")

# npm package name -> technology
NPM_PACKAGES: dict[str, TechSignature] = {
    # Frameworks
    "react": TechSignature("React", "Framework", "⚛️"),
    "next": TechSignature("Next.js", "Framework", "▲"),
    "vue": TechSignature("Vue.js", "Framework", "💚"),
    "nuxt": TechSignature("Nuxt", "Framework", "💚"),
    "@angular/core": TechSignature("Angular", "Framework", "🅰️"),
    "svelte": TechSignature("Svelte", "Framework", "🔥"),
    "express": TechSignature("Express", "Framework", "🚂"),
    "@nestjs/core": TechSignature("NestJS", "Framework", "🐈"),
    "react-native": TechSignature("React Native", "Framework", "📱"),
    "electron": TechSignature("Electron", "Framework", "🖥️"),
    # Languages / styling
    "typescript": TechSignature("TypeScript", "Language", "🔷"),
    "tailwindcss": TechSignature("Tailwind CSS", "Styling", "🎨"),
    # Databases / ORMs
    "prisma": TechSignature("Prisma", "Database/ORM", "🔺"),
    "@prisma/client": TechSignature("Prisma", "Database/ORM", "🔺"),
    "mongoose": TechSignature("MongoDB", "Database/ORM", "🍃"),
    "sequelize": TechSignature("Sequelize", "Database/ORM", "🗄️"),
    "typeorm": TechSignature("TypeORM", "Database/ORM", "🗄️"),
    "pg": TechSignature("PostgreSQL", "Database/ORM", "🐘"),
    "redis": TechSignature("Redis", "Database/ORM", "🟥"),
    # Libraries
    "graphql": TechSignature("GraphQL", "Library", "◈"),
    "@apollo/client": TechSignature("Apollo Client", "Library", "🚀"),
    "redux": TechSignature("Redux", "Library", "🔄"),
    "axios": TechSignature("Axios", "Library", "📡"),
    "next-auth": TechSignature("NextAuth.js", "Library", "🔐"),
    # Testing
    "jest": TechSignature("Jest", "Testing", "🃏"),
    "vitest": TechSignature("Vitest", "Testing", "🧪"),
    "cypress": TechSignature("Cypress", "Testing", "🌲"),
    "@playwright/test": TechSignature("Playwright", "Testing", "🎭"),
    # Build tooling
    "webpack": TechSignature("Webpack", "Build Tool", "📦"),
    "vite": TechSignature("Vite", "Build Tool", "⚡"),
    "eslint": TechSignature("ESLint", "Build Tool", "🧹"),
}

# Python manifests in priority order; the first one found wins
PYTHON_MANIFESTS = ("requirements.txt", "pyproject.toml", "setup.py", "Pipfile")
REQUIREMENTS_FILE = "requirements.txt"

# requirements.txt keyword (lowercase substring) -> technology
REQUIREMENTS_KEYWORDS: dict[str, TechSignature] = {
    "django": TechSignature("Django", "Framework", "🎸"),
    "flask": TechSignature("Flask", "Framework", "🧪"),
    "fastapi": TechSignature("FastAPI", "Framework", "⚡"),
    "pandas": TechSignature("Pandas", "Library", "🐼"),
    "numpy": TechSignature("NumPy", "Library", "🔢"),
    "tensorflow": TechSignature("TensorFlow", "Library", "🧠"),
    "torch": TechSignature("PyTorch", "Library", "🔥"),
    "scikit-learn": TechSignature("scikit-learn", "Library", "📊"),
    "sqlalchemy": TechSignature("SQLAlchemy", "Database/ORM", "🗄️"),
}

# Files/directories whose presence alone implies a technology
MARKER_FILES: dict[str, TechSignature] = {
    "Dockerfile": TechSignature("Docker", "DevOps", "🐳"),
    "docker-compose.yml": TechSignature("Docker Compose", "DevOps", "🐳"),
    ".github/workflows": TechSignature("GitHub Actions", "CI/CD", "⚙️"),
    ".gitlab-ci.yml": TechSignature("GitLab CI", "CI/CD", "🦊"),
    "terraform": TechSignature("Terraform", "Infrastructure", "🏗️"),
    "go.mod": TechSignature("Go", "Language", "🐹"),
    "Cargo.toml": TechSignature("Rust", "Language", "🦀"),
    "pom.xml": TechSignature("Java", "Language", "☕"),
    "build.gradle": TechSignature("Gradle", "Build Tool", "🐘"),
    "Gemfile": TechSignature("Ruby", "Language", "💎"),
    "composer.json": TechSignature("PHP", "Language", "🐘"),
    "tsconfig.json": TechSignature("TypeScript", "Language", "🔷"),
}


class RepositorySource(Protocol):
    """The file access the detector needs (GitHubClient satisfies it)."""

    async def get_file_text(self, owner: str, repo: str, path: str) -> str: ...

    async def path_exists(self, owner: str, repo: str, path: str) -> bool: ...


# =============================================================================
# PURE HELPERS
# =============================================================================

def merge_dependencies(manifest: dict) -> dict[str, str]:
    """
    Merge `dependencies` and `devDependencies` into one name -> version map.

    Direct dependencies win: a dev entry for a name that is already declared
    directly is ignored. Direct names come first in iteration order.
    """
    merged: dict[str, str] = {}
    for group in ("dependencies", "devDependencies"):
        declared = manifest.get(group)
        if not isinstance(declared, dict):
            continue
        for name, version in declared.items():
            if name not in merged:
                merged[name] = str(version)
    return merged


def match_dependencies(dependencies: dict[str, str]) -> list[DetectedTechnology]:
    """Exact table hits first (high, with version), then substring hits (medium)."""
    detected: list[DetectedTechnology] = []

    for dep_name, version in dependencies.items():
        signature = NPM_PACKAGES.get(dep_name)
        if signature:
            detected.append(signature.detected(Confidence.HIGH, version))

    # Scoped or prefixed names like "@vitejs/plugin-react"
    for dep_name in dependencies:
        for key, signature in NPM_PACKAGES.items():
            if key in dep_name and not any(t.name == signature.name for t in detected):
                detected.append(signature.detected(Confidence.MEDIUM))

    return detected


def match_requirements(text: str) -> list[DetectedTechnology]:
    lowered = text.lower()
    return [
        signature.detected(Confidence.HIGH)
        for keyword, signature in REQUIREMENTS_KEYWORDS.items()
        if keyword in lowered
    ]


def merge_technologies(
    technologies: list[DetectedTechnology],
    limit: int = MAX_TECHNOLOGIES,
) -> list[DetectedTechnology]:
    """Drop later entries with an already-seen display name, then cap."""
    seen: set[str] = set()
    unique: list[DetectedTechnology] = []
    for tech in technologies:
        if tech.name in seen:
            continue
        seen.add(tech.name)
        unique.append(tech)
    return unique[:limit]


# =============================================================================
# DETECTOR CLASS
# =============================================================================

class TechStackDetector:
    """
    Detects a repository's tech stack through a RepositorySource.

    detect() never raises; it returns whatever it could positively detect.
    """

    def __init__(self, source: RepositorySource):
        self.source = source

    async def detect(self, owner: str, repo: str) -> list[DetectedTechnology]:
        groups = await asyncio.gather(
            self._detect_from_package_json(owner, repo),
            self._detect_python(owner, repo),
            self._detect_markers(owner, repo),
        )
        technologies = [tech for group in groups for tech in group]
        result = merge_technologies(technologies)
        logger.info(
            f"Detected {len(result)} technologies for {owner}/{repo}",
            extra={"repository": f"{owner}/{repo}", "stage": "tech_stack"},
        )
        return result

    async def _read(self, owner: str, repo: str, path: str) -> str | None:
        try:
            return await self.source.get_file_text(owner, repo, path)
        except Exception as e:
            logger.debug(
                f"Probe {owner}/{repo}:{path} not detected: {e}",
                extra={"repository": f"{owner}/{repo}", "stage": "tech_stack", "path": path},
            )
            return None

    async def _exists(self, owner: str, repo: str, path: str) -> bool:
        try:
            return await self.source.path_exists(owner, repo, path)
        except Exception as e:
            logger.debug(
                f"Probe {owner}/{repo}:{path} not detected: {e}",
                extra={"repository": f"{owner}/{repo}", "stage": "tech_stack", "path": path},
            )
            return False

    async def _detect_from_package_json(self, owner: str, repo: str) -> list[DetectedTechnology]:
        text = await self._read(owner, repo, "package.json")
        if text is None:
            return []
        try:
            manifest = json.loads(text)
        except ValueError as e:
            logger.debug(f"package.json for {owner}/{repo} is not valid JSON: {e}")
            return []
        if not isinstance(manifest, dict):
            return []

        detected = [NODE_RUNTIME.detected(Confidence.HIGH)]
        detected.extend(match_dependencies(merge_dependencies(manifest)))
        return detected

    async def _detect_python(self, owner: str, repo: str) -> list[DetectedTechnology]:
        # requirements.txt is read (its text is scanned); the others only need to exist
        requirements, *others = await asyncio.gather(
            self._read(owner, repo, REQUIREMENTS_FILE),
            *(self._exists(owner, repo, path) for path in PYTHON_MANIFESTS[1:]),
        )

        if requirements is not None:
            return [PYTHON_LANGUAGE.detected(Confidence.HIGH)] + match_requirements(requirements)
        if any(others):
            return [PYTHON_LANGUAGE.detected(Confidence.HIGH)]
        return []

    async def _detect_markers(self, owner: str, repo: str) -> list[DetectedTechnology]:
        found = await asyncio.gather(
            *(self._exists(owner, repo, path) for path in MARKER_FILES)
        )
        return [
            signature.detected(Confidence.HIGH)
            for signature, present in zip(MARKER_FILES.values(), found)
            if present
        ]
