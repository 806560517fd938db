import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="germthresh",
    version="0.0.1",
    description="Fitting strategies for population threshold models of seed germination",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords = ['Germination','Hydrotime','Probit','Threshold'],
    packages=setuptools.find_packages(exclude=['tests', 'examples']),
    python_requires='>=3.8',
    install_requires = [
        'casadi>=3.5.0',
        'numpy>=1.17.0',
        'pandas>=1.0.0',
        'scipy',
        'statsmodels>=0.14.0',
        'matplotlib',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    license = 'LGPLv3+'
)
