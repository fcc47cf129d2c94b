from setuptools import setup
setup(
    name="clearskies",
    version="0.1",
    description="Reno-Hansen clear sky detection from measured and modelled irradiance.",
    license="CC BY-NC",
    packages=["clearskies"],
    package_dir={"":"src"},
    python_requires=">=3.8",
    install_requires=["numpy",
                      "scipy",
                      "pandas",
                      ],
    extras_require={"plot": ["matplotlib"],
                    "examples": ["pvlib",
                                 "matplotlib",
                                 ],
                    "test":["pytest",
                             "matplotlib",
                             ],
                    }
        )
