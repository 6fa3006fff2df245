import setuptools

setuptools.setup(
    name = 'c2spline',
    version = '1.0',
    description = 'C2-continuous interpolating splines after Yuksel',
    packages = setuptools.find_packages(exclude=['tests']),
    install_requires=['numpy', 'scipy'],
    extras_require={'test': ['pytest']},
)
