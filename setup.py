from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="showcase-sync",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=required,
    extras_require={"test": ["pytest"]},
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "showcase = showcase_sync.cli:main",
            "showcase-sync = showcase_sync.cli:sync_main",
            "showcase-delete = showcase_sync.cli:delete_main",
        ]
    },
    description="Sync local showcase folders to a Convex deployment",
)
