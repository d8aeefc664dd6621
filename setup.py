import setuptools

setuptools.setup(
    name="sksatool",
    version="1.0.0",
    author="The sksatool contributors",
    description=("SKSA secure kernel and application image builder"),
    license="Apache Software License",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "sksatool": ["data/*.bin"],
    },
    python_requires=">=3.8",
    install_requires=[
        'cryptography>=2.6',
        'intelhex>=2.2.1',
        'click',
        'pyyaml',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        "console_scripts": ["sksatool=sksatool.main:sksatool"]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: Apache Software License",
    ],
)
