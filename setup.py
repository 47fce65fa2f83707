from setuptools import setup, find_packages

setup(
    name="dl_modeling",
    version="0.1.0",
    packages=find_packages(where="src", include=["dl_modeling", "dl_modeling.*"]),
    package_dir={"": "src"},
    install_requires=[
        "h5py",
        "keras",
        "numpy",
        "pillow",
        "tensorflow",
    ],
    extras_require={
        'test': ['pytest'],
        'dev': ['pylint', 'pytest']
    }
)
