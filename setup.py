import setuptools

setuptools.setup(
    name="smart-reliability",
    version="0.1.0",
    description="Forecasts disk and parity array failure probabilities from SMART data",
    python_requires=">=3.10",
    packages=setuptools.find_packages(exclude=("tests*",)),
    install_requires=[
        "pydantic>2.0",
        "scipy",
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    entry_points={
        "console_scripts": [
            "smart-report = smart_reliability.tools.smart_report:main",
        ]
    },
    include_package_data=True,
    package_data={
        "": [
            "tables/profiles/*.json",
        ]
    },
)
