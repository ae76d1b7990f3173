from pathlib import Path
from setuptools import find_packages, setup


VERSION = "0.1.0"


def _load_requirements(path: str) -> list[str]:
    reqs: list[str] = []
    file_path = Path(__file__).parent / path
    if not file_path.exists():
        return reqs
    for line in file_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        reqs.append(line)
    return reqs


core_requirements = _load_requirements("requirements.txt")

extras = {
    "test": ["pytest>=7"],
}

entry_points = {
    "console_scripts": [
        "pipeline-config=pipeline_config.cli:main",
    ],
}


setup(
    name="pipeline-config",
    version=VERSION,
    description=(
        "Declarative JSON configuration loader for the derivatives "
        "data-processing pipeline"
    ),
    packages=find_packages(
        include=("pipeline_config*",), exclude=("pipeline_config.tests*",)
    ),
    include_package_data=False,
    python_requires=">=3.9",
    install_requires=core_requirements,
    extras_require=extras,
    entry_points=entry_points,
)
