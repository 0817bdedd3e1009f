import re

import setuptools

with open("pyhaentities/__init__.py", "r") as fh:
    version_tuple = re.search(r"version_tuple = \((\d+), (\d+), (\d+)\)", fh.read()).groups()

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="pyhaentities",
    version=".".join(version_tuple),
    author="pyhaentities",
    description="Python module to read Home Assistant device and entity registries for Amazon Echo emulation nodes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(),
    python_requires=">=3.8",
    install_requires=[
        'websockets>=10.0',
        'fastapi',
        'pydantic>=2.0',
        'pydantic-settings',
        'uvicorn',
        'python-dotenv',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'pyhaentities=pyhaentities.__main__:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
