from setuptools import find_packages, setup

with open("requirements.txt", "r", encoding="UTF-8") as f:
    required = f.read().splitlines()

with open("requirements-dev.txt", "r", encoding="UTF-8") as f:
    required_dev = f.read().splitlines()

setup(
    name="semasync",
    version="0.1.0",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages("src"),
    package_data={"semasync.ethpy.abis": ["*.json"]},
    install_requires=required,
    extras_require={"test": required_dev},
    entry_points={"console_scripts": ["semasync=semasync.chainsync.exec.run_sync:main"]},
)
