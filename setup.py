from setuptools import find_namespace_packages, setup


def read_requirements():
    with open("requirements.txt") as f:
        return f.read().splitlines()


setup(
    name="kiwimenu",
    version="0.1.0",
    description="User switcher panel extension driven by AccountsService and logind",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.11",
    install_requires=read_requirements(),
    extras_require={
        "gtk": [
            "PyGObject>=3.50",
        ],
        "dev": [
            "pygobject-stubs[Gtk4,Gdk]",
        ],
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    scripts=["scripts/kiwimenu"],
    packages=find_namespace_packages(include=["kiwimenu", "kiwimenu.*"]),
    include_package_data=True,
)
