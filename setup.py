from setuptools import find_packages, setup

setup(
    name="code-agent",
    version="0.1.0",
    description="AI issue fixing and line-level pull request review for GitHub repositories",
    packages=find_packages(include=["code_agent", "code_agent.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "anthropic>=0.40",
        "boto3>=1.34",
        "pydantic>=2.6",
        "PyYAML>=6.0",
    ],
    extras_require={
        "server": ["fastapi>=0.110", "uvicorn>=0.29"],
        "test": ["pytest>=8.0", "fastapi>=0.110", "httpx>=0.27"],
    },
    entry_points={"console_scripts": ["code-agent=code_agent.cli:main"]},
)
