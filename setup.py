from setuptools import setup, find_packages

setup(
    name='attributionToolbox',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    description='Survey analysis toolbox for attribution, affect and social-support constructs.',
    install_requires=[
        'numpy',
        'pandas<3',  # pandas 3 default string dtype turns None into NaN
        'pingouin',
        'factor_analyzer',
        'scikit-learn<1.8',  # factor_analyzer passes force_all_finite, removed in scikit-learn 1.8
        'semopy',
        'statsmodels',
        'matplotlib',
        'seaborn',
        'tqdm',
        'PyYAML',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'attribution-analysis=attribution_toolbox.run_analysis:main',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
