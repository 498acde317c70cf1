import setuptools

setuptools.setup(
    name="raidz-planner",
    version="0.1.0",
    description="Finds RAID-Z vdev configurations near a usable storage target",
    python_requires=">=3.10",
    packages=setuptools.find_packages(exclude=("tests*",)),
    install_requires=[
        "pydantic>2.0",
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
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    entry_points={
        "console_scripts": [
            "raidz-calc = raidz_planner.tools.raidz_calc:main",
        ]
    },
    include_package_data=True,
    package_data={
        "": [
            "hardware/profiles/disks.json",
        ]
    },
)
