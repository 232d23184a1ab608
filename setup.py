"""Setup configuration for Chatglass chat moderation."""

from setuptools import setup, find_packages

setup(
    name="chatglass",
    version="0.0.1",
    description="Chat message moderation with warn/report/mute escalation",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "PyYAML",
        "jsonschema",
        "prompt_toolkit",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatglass=chatglass.main:main",
        ],
    },
)
