from pathlib import Path

METADATA_FILE_NAMES = (
    "spring-configuration-metadata.json",
    "additional-spring-configuration-metadata.json",
)

EXCLUDE_DIRS = frozenset(
    {"venv", ".venv", "node_modules", ".git", "__pycache__", ".cfgpropsls", ".gradle", ".idea"}
)


def find_files_pathlib(
    pattern,
    directory=".",
    exclude_dirs=EXCLUDE_DIRS,
) -> list[Path]:
    """
    Finds all files matching a pattern in the given directory and its subfolders.

    Args:
        pattern (str): The filename pattern to match (e.g., '*.java', '*test*').
        directory (str): The starting directory for the search. Defaults to the current directory ('.').

    Returns:
        list: A sorted list of Path objects for all matching files.
    """
    base_path = Path(directory)
    if not base_path.is_dir():
        return []

    results = []

    try:
        for item in base_path.iterdir():
            if item.is_dir():
                if item.name not in exclude_dirs:
                    results.extend(find_files_pathlib(pattern, item, exclude_dirs))
            elif item.match(pattern):
                results.append(item)
    except PermissionError:
        pass

    return sorted(results)


def find_metadata_files(project_root: Path) -> list[Path]:
    """
    Find configuration metadata files in the project.

    Only files inside a META-INF directory are considered, which covers
    build outputs (target/classes, build/classes), resources and unpacked
    dependency jars.
    """
    results = []
    for name in METADATA_FILE_NAMES:
        results.extend(
            path for path in find_files_pathlib(name, project_root)
            if path.parent.name == "META-INF"
        )

    return sorted(results)


def find_java_sources(project_root: Path) -> list[Path]:
    """Find Java source files that may declare enum types."""
    return find_files_pathlib("*.java", project_root)


def find_project_root(workspace_root: Path) -> Path:
    """
    Find the project root within a workspace.

    The project root is the closest directory holding a Maven or Gradle
    build file; falls back to the workspace root itself.
    """
    build_files = ["pom.xml", "build.gradle", "build.gradle.kts"]

    if any((workspace_root / name).is_file() for name in build_files):
        return workspace_root

    for candidate in _search_subdirectories(workspace_root, max_depth=2):
        if any((candidate / name).is_file() for name in build_files):
            return candidate

    return workspace_root


def _search_subdirectories(root: Path, max_depth: int = 3) -> list[Path]:
    """
    Recursively search subdirectories up to max_depth.

    Returns list of candidate directories.
    """
    candidates = []

    def _recurse(path: Path, depth: int):
        if depth > max_depth:
            return

        try:
            for item in sorted(path.iterdir()):
                if item.is_dir() and not item.name.startswith('.'):
                    candidates.append(item)
                    _recurse(item, depth + 1)
        except PermissionError:
            pass

    _recurse(root, 1)
    return candidates
