from setuptools import setup, find_packages

LONG_DESC = open("README.rst").read()

setup(
    name="etckv",
    version="0.1.0",
    description="An async client for etcd's v2 keys API",
    long_description=LONG_DESC,
    license="MIT -or- Apache License 2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "asyncclick > 7.99",
        "trio >= 0.18",
        "anyio[trio] >= 4",
        "attrs >= 19",
        "outcome >= 1.1",
        "httpx >= 0.23",
        "ruamel.yaml >= 0.17",
    ],
    extras_require={"test": ["pytest", "pytest-trio"]},
    keywords=["async", "key-values", "etcd"],
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "License :: OSI Approved :: Apache Software License",
        "Framework :: AnyIO",
        "Framework :: Trio",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Database",
        "Topic :: System :: Distributed Computing",
    ],
    entry_points="""
    [console_scripts]
    etckv = etckv.command:cmd
    """,
    zip_safe=True,
)
